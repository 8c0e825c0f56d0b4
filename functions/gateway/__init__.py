"""
Gateway package: a FastAPI service for signup/login, bearer token
authentication, item CRUD over a document collection and image upload,
with Firebase (or in-memory) backends behind small adapter protocols.
"""
