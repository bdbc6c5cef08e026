"""
Models package for Kata Typer.

This package contains the data models, the keystroke performance tracker and
the managers that persist attempts, problems, users and statistics.
"""
