"""Login with Facebook: OAuth2 authorization-code flow and local user provisioning."""

__version__ = "0.1.0"
