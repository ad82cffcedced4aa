"""Highscores command-line interface."""
