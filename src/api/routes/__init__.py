"""
API Routes - HTTP endpoint handlers

- catalog: GET {api_location}, built per app from configuration
- system:  registrations, announcement, task introspection
"""
