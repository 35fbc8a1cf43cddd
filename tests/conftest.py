"""Test environment: an in-memory SQLite default engine, quiet logs"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["NOTIFICATIONS_ENABLED"] = "true"
