"""Credit ledger service for the Proyecto Hugo web app."""
