import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Player names live in process memory only; a restart clears them.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Board dimensions and neutral block count for new matches
    GRID_WIDTH = int(os.environ.get('GRID_WIDTH', '32'))
    GRID_HEIGHT = int(os.environ.get('GRID_HEIGHT', '32'))
    NEUTRAL_CELLS = int(os.environ.get('NEUTRAL_CELLS', '50'))
    # Seconds a turn lasts before the next generation runs on read
    TURN_DURATION_SEC = float(os.environ.get('TURN_DURATION_SEC', '2.0'))
    # Max wait (sec) for a registry or match lock before the request gives up
    LOCK_TIMEOUT_SEC = float(os.environ.get('LOCK_TIMEOUT_SEC', '1.0'))
