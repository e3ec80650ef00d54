import os


def get_database_uri():
    """
    Build the database URI from the environment
    DATABASE_URL wins; otherwise a MySQL URI is assembled from its parts
    """
    database_url = os.environ.get('DATABASE_URL')
    if database_url:
        return database_url
    
    user = os.environ.get('MYSQL_USER', 'admin')
    password = os.environ.get('MYSQL_PASSWORD', 'admin123')
    host = os.environ.get('DATABASE_HOST', 'localhost')
    port = os.environ.get('DATABASE_PORT', '3306')
    database = os.environ.get('MYSQL_DATABASE', 'repair_inventory_db')
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""
    
    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    ENV_NAME = 'default'
    
    # Database - resolved at app creation by get_database_uri()
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }
    MIGRATIONS_DIR = os.environ.get('MIGRATIONS_DIR', 'migrations')
    
    # Inventory backend: 'sql' or 'memory' (offline / demo mode)
    INVENTORY_BACKEND = os.environ.get('INVENTORY_BACKEND', 'sql')
    
    # Inventory rules
    DEFAULT_MIN_STOCK_LEVEL = int(os.environ.get('DEFAULT_MIN_STOCK_LEVEL', 5))
    PARTS_USAGE_ATOMIC = _env_bool('PARTS_USAGE_ATOMIC', False)
    
    # Pagination
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = int(os.environ.get('MAX_PAGE_SIZE', 100))
    AUDIT_LOG_DEFAULT_LIMIT = int(os.environ.get('AUDIT_LOG_DEFAULT_LIMIT', 200))
    
    # JWT
    JWT_SECRET = os.environ.get('JWT_SECRET')
    JWT_ALGORITHM = os.environ.get('JWT_ALGORITHM', 'HS256')
    JWT_ISSUER = os.environ.get('JWT_ISSUER')
    JWT_AUDIENCE = os.environ.get('JWT_AUDIENCE')
    
    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    
    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    ENV_NAME = 'development'
    LOG_LEVEL = 'DEBUG'
    JWT_SECRET = os.environ.get('JWT_SECRET', 'dev-jwt-secret')


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    ENV_NAME = 'testing'
    # Use in-memory SQLite for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    INVENTORY_BACKEND = 'sql'
    PARTS_USAGE_ATOMIC = False
    JWT_SECRET = 'test-jwt-secret'
    JWT_ISSUER = None
    JWT_AUDIENCE = None


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    ENV_NAME = 'production'


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
