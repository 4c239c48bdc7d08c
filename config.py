import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Phase timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '180'))
    RULE_ANNOUNCE_DELAY_SEC = int(os.environ.get('RULE_ANNOUNCE_DELAY_SEC', '5'))
    RESULTS_REVEAL_DELAY_SEC = int(os.environ.get('RESULTS_REVEAL_DELAY_SEC', '5'))
    SCOREBOARD_DURATION_SEC = int(os.environ.get('SCOREBOARD_DURATION_SEC', '10'))
    # How often a sleeping timer checks whether it was cancelled
    TIMER_POLL_SEC = float(os.environ.get('TIMER_POLL_SEC', '1.0'))
    # Comma separated list of origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    )
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
