if __name__ == "__main__":
    import uvicorn

    from driverbench.api import settings

    uvicorn.run(
        "driverbench.api:app", host=settings.server_host, port=settings.server_port, log_level="info"
    )
