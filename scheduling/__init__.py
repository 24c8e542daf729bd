"""
scheduling — registers the recurring Gmail check for a user.

A Cloud Scheduler job publishes to a per-user Pub/Sub topic; both are named
after the local part of the user's email address.
"""
