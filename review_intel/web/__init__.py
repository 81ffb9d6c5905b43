# Web Layer
# =========
# FastAPI JSON API. Import `app` for uvicorn, or `create_app` to wire your
# own store and notifier.
