import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'scores.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    HOST = '0.0.0.0'
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ORIGINS = '*'
    # Country reference data (ISO 3166-1 alpha-2 map, cached locally after first download)
    COUNTRIES_SOURCE_URL = (
        'https://gist.githubusercontent.com/ssskip/5a94bfcd2835bf1dea52/raw/'
        '59272a2d1c2122f0cedd83a76780a01d50726d98/ISO3166-1.alpha2.json'
    )
    COUNTRIES_CACHE_PATH = os.path.join(basedir, 'countries.cache.json')
    COUNTRIES_FETCH_TIMEOUT_SEC = 15
    # Quiz rules
    QUESTION_DURATION_SEC = 10
    DAILY_FLAG_COUNT = 10
    RANKING_SIZE = 10
    # Countdown recomputes remaining time from the clock on every tick
    COUNTDOWN_TICK_SEC = 0.1
