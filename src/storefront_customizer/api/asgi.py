"""ASGI entrypoint for the storefront customizer API."""

from storefront_customizer.api.app import create_app
from storefront_customizer.containers import build_container

app = create_app(build_container())
