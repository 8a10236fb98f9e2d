"""In-process metric collectors and the metric sets of the API server, client and sync manager."""