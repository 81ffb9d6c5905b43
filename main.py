"""
Review Intel - Web Server Entry Point
=====================================

Run this to start the API:
    python main.py

Then open http://127.0.0.1:8000/docs in your browser.

To alert guests whose reviews were never followed up:
    python run_alerts.py
"""

import os

import uvicorn


def main():
    """Start the web server."""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    print("\n" + "=" * 50)
    print("   Review Intel - Review API")
    print("=" * 50)
    print(f"\n   Starting server at http://{host}:{port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "review_intel.web.app:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "").lower() in ("1", "true", "yes"),
        log_level="info"
    )


if __name__ == "__main__":
    main()
