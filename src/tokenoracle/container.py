from dependency_injector import containers, providers

from tokenoracle.config import Settings
from tokenoracle.db.session import build_engine, build_session_factory
from tokenoracle.infra.cache.redis_cache import PriceCache
from tokenoracle.infra.http.backoff import BackoffRegistry
from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
from tokenoracle.infra.price.coingecko import COINGECKO_HOST
from tokenoracle.infra.price.service import build_price_provider
from tokenoracle.services.price_resolver import PriceResolver
from tokenoracle.services.scheduler import BackfillScheduler


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["tokenoracle.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.provider_rate_per_second,
        timeout=settings.provided.external_call_timeout,
        host_rates=providers.Dict({COINGECKO_HOST: settings.provided.coingecko_rate_per_second}),
    )

    price_cache = providers.Singleton(PriceCache.from_url, settings.provided.redis_url)

    price_provider = providers.Singleton(
        build_price_provider,
        http_client,
        coingecko_api_key=settings.provided.coingecko_api_key,
        alchemy_api_key=settings.provided.alchemy_api_key,
    )

    backoff = providers.Singleton(
        BackoffRegistry,
        base_delay=settings.provided.backoff_base_delay,
        timeout=settings.provided.external_call_timeout,
    )

    price_resolver = providers.Factory(
        PriceResolver,
        provider=price_provider,
        backoff=backoff,
        cache=price_cache,
        session_factory=session_factory,
        cache_ttl=settings.provided.price_cache_ttl,
    )

    scheduler = providers.Factory(
        BackfillScheduler,
        provider=price_provider,
        backoff=backoff,
    )
