"""ASGI entrypoint for the glucose advisor API."""

from glucose_advisor.api.app import create_app
from glucose_advisor.containers import build_container

app = create_app(build_container())
