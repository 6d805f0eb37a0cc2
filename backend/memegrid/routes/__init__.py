# Routes package - grid and editor endpoints
