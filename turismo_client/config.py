import os


class Config:
    API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
    REQUEST_TIMEOUT = float(os.getenv("API_TIMEOUT_SECONDS", "20"))
