import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Storage
    data_dir: str = os.getenv("LIBRARY_DATA_DIR", "data")
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.csv")
    users_file: str = os.getenv("LIBRARY_USERS_FILE", "users.csv")
    transactions_file: str = os.getenv("LIBRARY_TRANSACTIONS_FILE", "transactions.csv")

    # Lending rules
    default_loan_days: int = int(os.getenv("DEFAULT_LOAN_DAYS", "14"))
    default_renewal_days: int = int(os.getenv("DEFAULT_RENEWAL_DAYS", "7"))
    max_active_loans: int = int(os.getenv("MAX_ACTIVE_LOANS", "5"))

    # Logging / output
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE")
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain")

    # Application
    app_name: str = os.getenv("APP_NAME", "Library Lending")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _flag("DEBUG", "False")


settings = Settings()
