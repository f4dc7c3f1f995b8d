"""Tournament clock: schedule model, pure timer engine and persistence.

``schedule`` and ``engine`` are pure and framework-free. ``service`` and
``presets`` bind them to the database and are what HTTP routes import.
"""
