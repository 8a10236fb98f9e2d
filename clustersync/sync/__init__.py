"""Synced data hashing, partial update events and resource handlers."""