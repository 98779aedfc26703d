API_VERSION_HEADER = "X-PlantScan-Version"
REQUEST_ID_HEADER = "X-Request-ID"
