from otp_packager.api.main import app

if __name__ == "__main__":
    import os
    import uvicorn
    host = os.getenv("OTPPKG_HOST", "127.0.0.1")
    port = int(os.getenv("OTPPKG_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)
