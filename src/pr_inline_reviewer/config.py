"""
Configuration Management

시스템 설정 관리
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from pathlib import Path
import logging

from .llm.prompts import DEFAULT_SYSTEM_PROMPT, DEFAULT_USER_TEMPLATE, DIFF_PLACEHOLDER


@dataclass
class VCSConfig:
    """GitHub / GitLab 설정"""
    provider: str = "github"
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    gitlab_token: Optional[str] = None
    gitlab_base_url: str = "https://gitlab.com"
    webhook_secret: Optional[str] = None
    gitlab_webhook_token: Optional[str] = None
    timeout_seconds: int = 30


@dataclass
class ModelConfig:
    """리뷰 모델 API 설정"""
    api_url: str = ""
    api_key: Optional[str] = None
    model: str = "qwen-plus-latest"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    user_prompt_template: str = DEFAULT_USER_TEMPLATE
    timeout_seconds: int = 60


@dataclass
class ReviewConfig:
    """리뷰 게시 설정"""
    inline_issue_comment: bool = True
    comment_only_changes: bool = False
    max_diff_chars: int = 6000


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""
    host: str = "0.0.0.0"
    port: int = 7995


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    vcs: VCSConfig = field(default_factory=VCSConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            vcs=VCSConfig(
                provider=os.getenv("VCS_PROVIDER", "github").lower(),
                github_token=os.getenv("GITHUB_TOKEN"),
                github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                gitlab_token=os.getenv("GITLAB_TOKEN"),
                gitlab_base_url=os.getenv("GITLAB_BASE_URL", "https://gitlab.com"),
                webhook_secret=os.getenv("WEBHOOK_SECRET"),
                gitlab_webhook_token=os.getenv("GITLAB_WEBHOOK_TOKEN"),
                timeout_seconds=int(os.getenv("VCS_TIMEOUT", "30")),
            ),
            model=ModelConfig(
                api_url=os.getenv("AI_API_URL", ""),
                api_key=os.getenv("AI_API_KEY"),
                model=os.getenv("AI_MODEL", "qwen-plus-latest"),
                system_prompt=os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
                user_prompt_template=os.getenv("USER_PROMPT_TEMPLATE", DEFAULT_USER_TEMPLATE),
                timeout_seconds=int(os.getenv("AI_TIMEOUT", "60")),
            ),
            review=ReviewConfig(
                inline_issue_comment=_env_flag("INLINE_ISSUE_COMMENT", "true"),
                comment_only_changes=_env_flag("COMMENT_ONLY_CHANGES", "false"),
                max_diff_chars=int(os.getenv("MAX_DIFF_CHARS", "6000")),
            ),
            server=ServerConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "7995")),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=_env_flag("DEBUG", "false"),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(
            vcs=VCSConfig(**config_data.get('vcs', {})),
            model=ModelConfig(**config_data.get('model', {})),
            review=ReviewConfig(**config_data.get('review', {})),
            server=ServerConfig(**config_data.get('server', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
            debug=config_data.get('debug', False),
        )

    def token_for(self, provider: str) -> Optional[str]:
        """Provider에 해당하는 토큰 반환"""
        if provider == "github":
            return self.vcs.github_token
        if provider == "gitlab":
            return self.vcs.gitlab_token
        return None

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        # Provider 및 토큰 확인
        if self.vcs.provider not in {'github', 'gitlab'}:
            errors.append(f"vcs provider must be either 'github' or 'gitlab', got: {self.vcs.provider}")
        elif not self.token_for(self.vcs.provider):
            errors.append(f"{self.vcs.provider} token is required when vcs provider is '{self.vcs.provider}'")

        # 모델 API 확인
        if not self.model.api_url:
            errors.append("Model api_url is required")
        if not self.model.system_prompt.strip():
            errors.append("System prompt cannot be empty")
        if DIFF_PLACEHOLDER not in self.model.user_prompt_template:
            errors.append(f"User prompt template must contain {DIFF_PLACEHOLDER}")

        if self.review.max_diff_chars <= 0:
            errors.append("max_diff_chars must be positive")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        return {
            'vcs': {
                'provider': self.vcs.provider,
                'github_api_url': self.vcs.github_api_url,
                'gitlab_base_url': self.vcs.gitlab_base_url,
                'timeout_seconds': self.vcs.timeout_seconds,
                # 보안상 토큰은 제외
            },
            'model': {
                'api_url': self.model.api_url,
                'model': self.model.model,
                'timeout_seconds': self.model.timeout_seconds,
            },
            'review': {
                'inline_issue_comment': self.review.inline_issue_comment,
                'comment_only_changes': self.review.comment_only_changes,
                'max_diff_chars': self.review.max_diff_chars,
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
            'debug': self.debug,
        }


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            # 루트 로거에 핸들러 추가
            root_logger = logging.getLogger()
            root_logger.addHandler(handler)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """YAML 파일이 주어지면 파일에서, 아니면 환경 변수에서 설정 로드"""
    if config_path:
        return AppConfig.from_yaml(config_path)
    return AppConfig.from_env()
