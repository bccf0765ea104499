"""Administrative HTTP surface."""

from range_keeper.api.app import create_app

__all__ = ["create_app"]
