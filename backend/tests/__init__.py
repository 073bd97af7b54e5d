"""Tests for the notifications backend."""
