"""
connectors — OAuth integration with Google.

Provides:
  • OAuth2 auth-URL generation (offline access, forced consent)
  • Callback handling (code → credential exchange)
  • Gmail profile lookup to identify the authorizing account
  • Per-user credential storage & auto-refresh
  • Fernet encryption of tokens at rest
"""
