"""
Credentialing backend: verification workflow, admin authorization and audit log.
"""
__version__ = "1.0.0"
