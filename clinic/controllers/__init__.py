# Controllers package: Flask blueprints for the HTTP API
