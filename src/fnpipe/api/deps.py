"""
Composition root for the example services.

Builds the process-wide container and every example pipeline once, at
startup. Request-time code never calls anything in this module.

Manifesto:
    Dependency injection keeps handlers thin. Singletons (settings, the
    token service, the service collaborators) are created once and
    shared; per-request state lives only on the ``Context``.

Tags:
    fnpipe, api, dependency-injection, singletons, composition-root

Doc-Types:
    api-reference
"""

from __future__ import annotations

from fnpipe.auth.tokens import JwtTokenService
from fnpipe.core.container import Container, get_container
from fnpipe.core.settings import FnpipeSettings, get_settings
from fnpipe.framework.handler import Pipeline

__all__ = ["build_container", "build_pipelines", "get_settings"]


def build_container(settings: FnpipeSettings, container: Container | None = None) -> Container:
    """Register settings, the token service and the example collaborators."""
    from fnpipe.services.chat import MemberChatService
    from fnpipe.services.login import LoginService
    from fnpipe.services.weather import (
        AlertPublisher,
        HttpWeatherApi,
        StaticWeatherApi,
        WeatherApiPort,
        WeatherService,
        WeatherValidation,
    )

    container = container or get_container()
    container.register(FnpipeSettings, settings)
    container.register(JwtTokenService, JwtTokenService.from_settings(settings))

    container.register_factory(LoginService, lambda c: LoginService(c.get(JwtTokenService)))
    container.register_factory(MemberChatService, lambda c: MemberChatService())

    container.register(WeatherService, WeatherService())
    container.register(AlertPublisher, AlertPublisher())
    if settings.weather_api_url:
        container.register(
            WeatherApiPort, HttpWeatherApi(settings.weather_api_url, settings.weather_api_key)
        )
    else:
        container.register(WeatherApiPort, StaticWeatherApi())
    container.register_factory(
        WeatherValidation,
        lambda c: WeatherValidation(c.get(WeatherService), c.get(WeatherApiPort)),
    )
    return container


def build_pipelines(settings: FnpipeSettings, container: Container) -> dict[str, Pipeline]:
    """Build every example pipeline against *container*, keyed by name."""
    from fnpipe.services.chat import build_chat_pipelines
    from fnpipe.services.login import build_login_pipelines
    from fnpipe.services.weather import build_weather_pipelines

    verifier = container.get(JwtTokenService)
    return {
        **build_login_pipelines(container),
        **build_chat_pipelines(container, settings, verifier),
        **build_weather_pipelines(container, verifier),
    }
