"""Tests for the Carpool integration."""
