"""RealtyFlow: multi-tenant real-estate CRM."""

__version__ = "0.1.0"
