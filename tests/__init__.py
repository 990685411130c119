"""Test suite for taskdeck."""
