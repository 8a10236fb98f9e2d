"""Handlers that extract cluster metadata from dict-shaped Kubernetes objects."""