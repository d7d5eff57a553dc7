"""Tests for msideploy."""
