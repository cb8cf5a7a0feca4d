"""
Core storage addressing logic.

This module is framework-agnostic - it doesn't import FastAPI, HTTP
clients, or any infrastructure concerns. This separation means we can
test signing and reference resolution in isolation.
"""
