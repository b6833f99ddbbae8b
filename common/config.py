from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings

DEFAULT_PROMPT_TEMPLATE = (
    "Generate a YouTube title and description based on the following transcript. "
    "Title should be catchy and SEO-friendly. Description should summarize key points, "
    "include timestamps for major sections, and ask viewers to like and subscribe."
)


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3040

    model_config = {"env_prefix": "GATEWAY_"}


class CaptionSettings(BaseSettings):
    timedtext_url: str = "https://www.youtube.com/api/timedtext"
    default_lang: str = "en"

    model_config = {"env_prefix": "CAPTIONS_"}


class GenerationSettings(BaseSettings):
    api_url: str = "https://api.openai.com/v1"
    model_name: str = "gpt-3.5-turbo"
    timeout_s: float = 120.0
    max_transcript_chars: int = 15000

    model_config = {"env_prefix": "GENERATION_"}


class ClientSettings(BaseSettings):
    server_address: str = ""
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    api_key: SecretStr = SecretStr("")
    lang: str = "en"
    settings_path: Path = Path.home() / ".config" / "video-describer" / "settings.json"

    model_config = {"env_prefix": "DESCRIBER_"}
