"""
Daily mission tracker service.

A FastAPI application that lets authenticated users keep a short list of
missions per calendar day. Authentication and persistence are delegated to
Firebase (Auth + Firestore), with SQL and in-memory stores for self-hosted
and test setups.
"""
