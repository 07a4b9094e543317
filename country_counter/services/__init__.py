"""Business logic services.

Services contain all visit logic and are called by routes.
Services accept their dependencies (store, resolver) explicitly.
"""
