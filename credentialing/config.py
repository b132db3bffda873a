"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.
    
    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Secret key for JWT token encoding
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token expiration time in minutes
        
        # Audit settings
        audit_page_size: Number of audit events per page
        display_timezone: IANA timezone used when rendering audit timestamps
        
        # Email settings (notifications are only emailed when mail_server is set)
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_port: SMTP server port
        mail_server: SMTP server hostname
        
        # Bootstrap admin settings (optional)
        bootstrap_admin_email: Optional super admin email for first admin creation
        bootstrap_admin_password: Optional super admin password for first admin creation
        bootstrap_admin_name: Display name of the bootstrap super admin
    """
    # Database settings
    database_url: str = "sqlite:///./credentialing.db"
    
    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    
    # Audit settings
    audit_page_size: int = 50
    display_timezone: str = "Asia/Kolkata"
    
    # Email settings
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_port: int = 587
    mail_server: Optional[str] = None
    
    # Bootstrap admin settings (optional - only used for first admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None
    bootstrap_admin_name: str = "Super Admin"

    # Logging
    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
