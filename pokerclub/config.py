import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///poker_club.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Comma-separated list of frontend origins allowed by CORS
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')
        if o.strip()
    ]
    # Default blind schedule (seconds) used when a game has none
    TIMER_DEFAULT_LEVEL_SEC = int(os.environ.get('TIMER_DEFAULT_LEVEL_SEC', '600'))
    TIMER_DEFAULT_BREAK_SEC = int(os.environ.get('TIMER_DEFAULT_BREAK_SEC', '600'))
    # Insert a break after every N blind levels in the default schedule. 0 disables.
    TIMER_DEFAULT_BREAK_AFTER = int(os.environ.get('TIMER_DEFAULT_BREAK_AFTER', '4'))
    # Compare-and-set attempts before a timer write gives up with a conflict
    TIMER_CAS_ATTEMPTS = int(os.environ.get('TIMER_CAS_ATTEMPTS', '3'))
