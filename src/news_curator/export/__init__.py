"""Delivery to Slack, operator notifications and the Google Sheets ledger."""
