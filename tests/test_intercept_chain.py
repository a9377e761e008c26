from imtools.mw.intercept_chain import intercept_chain


def _recorder(name, calls):
    def inter(ctx, req, info, handler):
        calls.append(f"{name}-before")
        resp = handler(ctx, req + [name])
        calls.append(f"{name}-after")
        return resp
    return inter


def test_order_and_result():
    calls = []
    chain = intercept_chain(_recorder("a", calls), _recorder("b", calls))
    resp = chain("ctx", [], "info", lambda ctx, req: req)
    assert resp == ["a", "b"]
    assert calls == ["a-before", "b-before", "b-after", "a-after"]


def test_empty_chain_calls_handler():
    chain = intercept_chain()
    assert chain("ctx", 3, None, lambda ctx, req: req * 2) == 6


def test_info_passed_through():
    def inter(ctx, req, info, handler):
        return handler(ctx, req + [info])

    resp = intercept_chain(inter, inter)("c", [], "the-info", lambda c, r: r)
    assert resp == ["the-info", "the-info"]