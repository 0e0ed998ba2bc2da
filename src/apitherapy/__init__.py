"""
Apitherapy Care: caretaker workflow backend for bee-venom therapy clinics

Holds the in-progress treatment session with durable autosave, recommends
protocols for submitted patients, and ships the one-time migrations that
restructure patient records into nested medical records.
"""

__version__ = "0.1.0"
__author__ = "Apitherapy Care Team"
__description__ = "Apitherapy caretaker workflow backend"
