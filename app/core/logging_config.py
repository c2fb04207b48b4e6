import logging
import sys

def setup_logging():
    """
    Configure logging for the application.
    
    Sets up logging to stdout with timestamps, log levels, and module names.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    
    # Reduce SQLAlchemy noise in logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    
    return logging.getLogger("tenantcore")


# Create global logger instance
logger = setup_logging()
