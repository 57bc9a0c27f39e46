import uvicorn
from contact_api.config import settings
from contact_api.main import app  # Import the FastAPI app

# Standalone mode; serverless hosts import `app` directly
if __name__ == "__main__":
    uvicorn.run("contact_api.main:app", host="0.0.0.0", port=settings.PORT)
