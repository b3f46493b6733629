from portfolio_api.api.app import API_PREFIX, ROUTES, PortfolioServer, create_app

__all__ = ["API_PREFIX", "ROUTES", "PortfolioServer", "create_app"]
