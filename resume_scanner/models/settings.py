"""
Settings Models for Configuration Management
"""
from pydantic import BaseModel, ConfigDict, Field


class AIServiceSettings(BaseModel):
    """Azure OpenAI style chat-completions endpoint configuration"""
    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(default="", description="Base URL of the AI resource, e.g. https://my-resource.openai.azure.com")
    api_key: str = Field(default="", description="API key sent in the api-key header; empty disables enrichment")
    deployment_name: str = Field(default="gpt-4o-mini", description="Deployment (model) name")
    api_version: str = Field(default="2024-02-01", description="API version query parameter")
    max_prompt_length: int = Field(default=50000, ge=1, description="Resume text is cut to this many characters")
    max_tokens: int = Field(default=1024, ge=1, description="Maximum tokens to generate")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Generation temperature")
    timeout: float = Field(default=120, gt=0, description="Request timeout in seconds")
    retry_attempts: int = Field(default=3, ge=1, le=10, description="Total attempts for transient failures")
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Backoff base; the wait is retry_delay * 2**attempt")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())


class ProcessingSettings(BaseModel):
    """Processing and Performance Configuration"""
    model_config = ConfigDict(frozen=True)

    max_concurrent: int = Field(default=5, ge=1, le=64, description="Maximum resumes parsed at the same time")


class AppSettings(BaseModel):
    """Complete application configuration"""
    model_config = ConfigDict(frozen=True)

    resume_folder: str = Field(default="./data/resumes", description="Folder that holds uploaded resumes")
    ai: AIServiceSettings = Field(default_factory=AIServiceSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
