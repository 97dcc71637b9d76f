"""Postforge - FastAPI REST API layer.

This package contains the FastAPI application, the Pydantic request/response
models, and request validation.

Modules
-------
main
    FastAPI application factory, route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response bodies.
validation
    Required-field checks, defaults and file name validation.
"""
