SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_HOURS = 1

DB_BACKEND = "memory"

MONGO_CONFIG = {
    "host": "127.0.0.1",
    "port": 27017,
    "user": "",
    "password": "",
    "database": "class_test",
}

STUDENT_EMAIL_DOMAIN = "student.test"

CORS_ORIGINS = ["http://localhost:5173"]

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
