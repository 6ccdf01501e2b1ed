from appbuilder.server import create_app
from appbuilder.settings import Settings

settings = Settings()
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
