import os
from dotenv import load_dotenv

load_dotenv()


#Over here all the configurations are added within this class
class Config:
    DATABASE = os.getenv('DB_PATH', 'blog.db')
    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-secret-change-me')
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = int(os.getenv('JWT_EXPIRES_HOURS', '168'))  # one week
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
    # Scores strictly above/below +-threshold count as positive/negative
    SENTIMENT_THRESHOLD = int(os.getenv('SENTIMENT_THRESHOLD', '1'))
    PORT = int(os.getenv('PORT', '5000'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
