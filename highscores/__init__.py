"""Concurrent scraper for the Old School RuneScape highscores."""
