"""HTTP surface: thin FastAPI routers over the aggregation core."""
