"""
End-to-end tests for the HTTP and WebSocket surface using FastAPI's TestClient.
"""

import pytest


def register(client, email="bob@x.com", password="pw", name="Bob"):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


def trade(client, headers, symbol, side, quantity):
    return client.post("/api/portfolio/trade", headers=headers,
                       json={"symbol": symbol, "type": side, "quantity": quantity})


def test_health_reports_counts(client, auth_headers):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["users"] == 1
    assert body["stocks"] == 10
    assert body["timestamp"].endswith("Z")


def test_list_stocks(client):
    body = client.get("/api/stocks").json()
    assert body["success"] is True
    assert len(body["data"]) == 10
    first = body["data"][0]
    assert set(first) >= {"symbol", "name", "price", "change", "changePercent"}


def test_get_single_stock(client):
    assert client.get("/api/stocks/reliance").json()["data"]["price"] == 2850.75
    missing = client.get("/api/stocks/NOPE")
    assert missing.status_code == 404
    assert missing.json()["success"] is False


def test_register_returns_token_and_public_user(client):
    response = register(client)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert "password" not in body["user"]
    assert body["user"]["id"].startswith("user_")
    assert body["user"]["portfolio"] == {"cash": 500000, "stocks": [], "transactions": []}


def test_register_rejects_missing_fields_and_duplicates(client):
    missing = client.post("/api/auth/register", json={"email": "x@x.com", "password": "pw"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing required fields"

    assert register(client).status_code == 200
    duplicate = register(client)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "User already exists"


def test_login(client):
    register(client)
    ok = client.post("/api/auth/login", json={"email": "bob@x.com", "password": "pw"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "bob@x.com"

    bad = client.post("/api/auth/login", json={"email": "bob@x.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "Invalid credentials"

    missing = client.post("/api/auth/login", json={"email": "bob@x.com"})
    assert missing.status_code == 400


def test_portfolio_requires_bearer_token(client):
    no_header = client.get("/api/portfolio")
    assert no_header.status_code == 401
    assert no_header.json()["error"] == "No token provided"

    bad_token = client.get("/api/portfolio", headers={"Authorization": "Bearer made-up"})
    assert bad_token.status_code == 401
    assert bad_token.json()["error"] == "Invalid token"


def test_portfolio_for_vanished_user_is_404(client, app):
    token = app.state.sessions.issue_token("user_gone")
    response = client.get("/api/portfolio", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_buy_then_sell_flow(client, app, auth_headers, pin_price):
    bought = trade(client, auth_headers, "RELIANCE", "BUY", 10)
    assert bought.status_code == 200
    body = bought.json()
    assert body["message"] == "BUY order executed successfully"
    assert body["transaction"]["price"] == 2850.75
    assert body["transaction"]["quantity"] == 10

    pin_price(app.state.quote_store, "RELIANCE", 3000.00)
    portfolio = client.get("/api/portfolio", headers=auth_headers).json()
    holding = portfolio["portfolio"]["stocks"][0]
    assert holding["currentPrice"] == 3000.00
    assert holding["value"] == 30000.00
    summary = portfolio["summary"]
    assert summary["cash"] == 471492.50
    assert summary["stockValue"] == 30000.00
    assert summary["totalValue"] == 501492.50
    assert summary["totalPnL"] == 1492.50

    sold = trade(client, auth_headers, "RELIANCE", "SELL", 10)
    assert sold.status_code == 200
    after = client.get("/api/portfolio", headers=auth_headers).json()
    assert after["portfolio"]["stocks"] == []
    assert after["portfolio"]["cash"] == 501492.50
    assert len(after["portfolio"]["transactions"]) == 2


def test_trade_errors(client, auth_headers):
    assert trade(client, auth_headers, "TCS", "BUY", 0).json()["error"] == "Invalid trade parameters"
    assert trade(client, auth_headers, "TCS", "HOLD", 1).status_code == 400
    assert trade(client, auth_headers, "TCS", "BUY", "lots").status_code == 400

    unknown = trade(client, auth_headers, "NOPE", "BUY", 1)
    assert unknown.status_code == 404
    assert unknown.json()["error"] == "User or stock not found"

    broke = trade(client, auth_headers, "TCS", "BUY", 1000)
    assert broke.status_code == 400
    assert broke.json()["error"] == "Insufficient cash"

    short = trade(client, auth_headers, "TCS", "SELL", 1)
    assert short.status_code == 400
    assert short.json()["error"] == "Insufficient stock quantity"


def test_summary_and_holdings_endpoints(client, auth_headers):
    trade(client, auth_headers, "ITC", "BUY", 4)

    summary = client.get("/api/portfolio/summary", headers=auth_headers).json()["summary"]
    assert summary["stocksCount"] == 1
    assert summary["totalInvested"] == 1827.00

    holdings = client.get("/api/portfolio/holdings", headers=auth_headers).json()["holdings"]
    assert [h["symbol"] for h in holdings] == ["ITC"]
    assert holdings[0]["gainLoss"] == 0


def test_transactions_filter_and_paginate(client, auth_headers):
    for _ in range(3):
        trade(client, auth_headers, "ITC", "BUY", 1)
    trade(client, auth_headers, "SBIN", "BUY", 1)
    trade(client, auth_headers, "ITC", "SELL", 1)

    everything = client.get("/api/portfolio/transactions", headers=auth_headers).json()
    assert everything["pagination"]["total"] == 5
    assert everything["transactions"][0]["type"] == "SELL"

    sells = client.get("/api/portfolio/transactions?type=sell", headers=auth_headers).json()
    assert [t["type"] for t in sells["transactions"]] == ["SELL"]

    sbin = client.get("/api/portfolio/transactions?symbol=sb", headers=auth_headers).json()
    assert [t["symbol"] for t in sbin["transactions"]] == ["SBIN"]

    page = client.get("/api/portfolio/transactions?page=2&limit=2", headers=auth_headers).json()
    assert len(page["transactions"]) == 2
    assert page["pagination"] == {"current": 2, "limit": 2, "total": 5, "pages": 3}


def test_cli_format_renders_text_table(client):
    response = client.get("/api/stocks?format=cli")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "SYMBOL" in response.text
    assert "RELIANCE" in response.text


def test_cli_user_agent_gets_text(client):
    response = client.get("/health", headers={"User-Agent": "curl/8.4.0"})
    assert response.headers["content-type"].startswith("text/plain")
    assert '"status": "ok"' in response.text


def test_pretty_flag_indents_json(client):
    response = client.get("/api/stocks?pretty=1")
    assert response.headers["content-type"].startswith("application/json")
    assert response.text.startswith("{\n  ")


def test_cli_error_keeps_status_code(client):
    response = client.get("/api/portfolio?format=cli")
    assert response.status_code == 401
    assert "No token provided" in response.text


def test_websocket_sends_quotes_on_connect(client):
    with client.websocket_connect("/ws") as ws:
        message = ws.receive_json()
        assert message["event"] == "stockUpdate"
        assert len(message["data"]) == 10
        ws.send_text("ping")
        assert ws.receive_text() == "pong"


def test_websocket_receives_tick_broadcast(client, app):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        app.state.simulator.tick()
        message = ws.receive_json()
        assert message["event"] == "stockUpdate"
        assert all(q["lastUpdated"] for q in message["data"])


@pytest.mark.parametrize("quantity", [True, False, 2.5, 3.0, "10", -1, [1], {"n": 1}])
def test_trade_rejects_non_integer_quantities(client, auth_headers, quantity):
    response = trade(client, auth_headers, "TCS", "BUY", quantity)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid trade parameters"

    portfolio = client.get("/api/portfolio", headers=auth_headers).json()["portfolio"]
    assert portfolio["cash"] == 500000
    assert portfolio["transactions"] == []


def test_profile_and_verify(client, auth_headers):
    profile = client.get("/api/auth/profile", headers=auth_headers)
    assert profile.status_code == 200
    user = profile.json()["user"]
    assert user["email"] == "alice@x.com"
    assert "password" not in user

    verified = client.post("/api/auth/verify", headers=auth_headers).json()
    assert verified["message"] == "Token is valid"
    assert verified["user"] == {"userId": user["id"], "email": "alice@x.com"}

    assert client.get("/api/auth/profile").status_code == 401
    assert client.post("/api/auth/verify", headers={"Authorization": "Bearer made-up"}).status_code == 401


def test_profile_and_verify_for_vanished_user(client, app):
    headers = {"Authorization": f"Bearer {app.state.sessions.issue_token('user_gone')}"}
    assert client.get("/api/auth/profile", headers=headers).status_code == 404
    assert client.post("/api/auth/verify", headers=headers).status_code == 401


def test_auth_stats_counts_users(client, auth_headers):
    stats = client.get("/api/auth/stats").json()["stats"]
    assert stats["totalUsers"] == 1
    assert stats["timestamp"].endswith("Z")


def test_performance_picks_best_and_worst_holding(client, app, auth_headers, pin_price):
    empty = client.get("/api/portfolio/performance", headers=auth_headers).json()["performance"]
    assert empty["topPerformer"] is None and empty["worstPerformer"] is None
    assert empty["totalValue"] == 500000

    trade(client, auth_headers, "ITC", "BUY", 4)
    trade(client, auth_headers, "SBIN", "BUY", 2)
    pin_price(app.state.quote_store, "ITC", 500.00)
    pin_price(app.state.quote_store, "SBIN", 600.00)

    perf = client.get("/api/portfolio/performance", headers=auth_headers).json()["performance"]
    assert perf["topPerformer"]["symbol"] == "ITC"
    assert perf["worstPerformer"]["symbol"] == "SBIN"
    assert perf["stocksCount"] == 2
    assert perf["transactionsCount"] == 2
    assert perf["stocksValue"] == 3200.00
    assert perf["totalValue"] == 500016.10
    assert perf["totalGainLoss"] == 16.10


def test_top_and_worst_performing_stocks(client):
    top = client.get("/api/stocks/performance/top/3").json()
    assert [q["symbol"] for q in top["data"]] == ["BHARTIARTL", "INFY", "RELIANCE"]
    assert top["message"] == "Top 3 performing stocks"

    worst = client.get("/api/stocks/performance/worst/2").json()
    assert [q["symbol"] for q in worst["data"]] == ["ICICIBANK", "SBIN"]


@pytest.mark.parametrize("count", ["0", "-2", "lots"])
def test_performance_count_falls_back_to_ten(client, count):
    body = client.get(f"/api/stocks/performance/top/{count}").json()
    assert len(body["data"]) == 10
    assert body["message"] == "Top 10 performing stocks"


def test_stocks_by_sector_matches_company_name(client):
    body = client.get("/api/stocks/sector/Bank").json()
    assert sorted(q["symbol"] for q in body["data"]) == ["HDFCBANK", "ICICIBANK", "KOTAKBANK", "SBIN"]
    assert body["message"] == "4 stocks found for sector: Bank"
    assert client.get("/api/stocks/sector/steel").json()["data"] == []
