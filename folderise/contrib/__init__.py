"""Plugins shipped with folderise."""
