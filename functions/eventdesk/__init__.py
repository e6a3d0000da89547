"""
EventDesk backend.

A FastAPI service for an event-entertainment team: post-event reports with
photos and per-member feedback, the member roster and admin-managed user
accounts, on top of a hosted auth service, a SQL database and S3-compatible
object storage.
"""
