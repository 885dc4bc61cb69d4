"""Thin API launcher.

This is the uvicorn entrypoint. All application logic lives in the mythos package.
Run with: uvicorn main:app --reload

The app instance is created here (not in mythos.app) so tests can import
create_app without configuring logging or the environment.
"""

from mythos.app import add_request_id_middleware, create_app
from mythos.config import Environment, get_settings
from mythos.logging import configure_logging

# JSON logs everywhere except local development
configure_logging(json_format=get_settings().mythos_env != Environment.LOCAL)

app = create_app()
# Add request-id middleware LAST so it runs FIRST (outermost)
add_request_id_middleware(app)

__all__ = ["app"]
