from checkout_api.api.app import create_app
from checkout_api.shared.config import settings
from checkout_api.shared.logging import configure_logging

configure_logging(settings.log_level)

app = create_app()
