from pydantic import Field
from pydantic_settings import BaseSettings

CHAINHOOKS_BASE_URLS = {
    "mainnet": "https://api.mainnet.hiro.so",
    "testnet": "https://api.testnet.hiro.so",
}

STACKS_API_URLS = {
    "mainnet": "https://api.mainnet.hiro.so",
    "testnet": "https://api.testnet.hiro.so",
}


class Settings(BaseSettings):
    app_name: str = Field("chainhook-invoice-relay", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    port: int = Field(3000, alias="PORT")

    # Invoice store: "sqlite" (file-backed) or "memory"
    store_backend: str = Field("sqlite", alias="STORE_BACKEND")
    database_path: str = Field("data/app.db", alias="DATABASE_PATH")

    # CORS allowed origins (comma-separated, the dashboard dev server by default)
    cors_origins: str = Field("http://localhost:5173,http://127.0.0.1:5173", alias="CORS_ORIGINS")

    # Inbound webhook. When a token is set, deliveries must carry "Authorization: Bearer <token>"
    webhook_auth_token: str | None = Field(default=None, alias="CHAINHOOK_WEBHOOK_TOKEN")
    webhook_url: str = Field("http://127.0.0.1:3000/webhook", alias="CHAINHOOK_WEBHOOK_URL")

    # Stacks / Hiro
    stacks_network: str = Field("mainnet", alias="STACKS_NETWORK")
    chainhooks_base_url: str | None = Field(default=None, alias="CHAINHOOKS_BASE_URL")
    chainhooks_api_key: str | None = Field(default=None, alias="CHAINHOOKS_API_KEY")
    chainhooks_jwt: str | None = Field(default=None, alias="CHAINHOOKS_JWT")
    stacks_api_url: str | None = Field(default=None, alias="STACKS_API_URL")
    contract_id: str = Field(
        "SP2A8V93XXB43Q8JXQNCS9EBFHZJ6A2HVXHC4F4ZB.chainhook-contract", alias="CONTRACT_ID"
    )

    http_timeout: float = Field(10.0, alias="HTTP_TIMEOUT")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    def resolved_chainhooks_base_url(self) -> str:
        return self.chainhooks_base_url or CHAINHOOKS_BASE_URLS.get(
            self.stacks_network, CHAINHOOKS_BASE_URLS["mainnet"]
        )

    def resolved_stacks_api_url(self) -> str:
        return self.stacks_api_url or STACKS_API_URLS.get(
            self.stacks_network, STACKS_API_URLS["mainnet"]
        )

settings = Settings()
