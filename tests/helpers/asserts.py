def assert_under_root(canonical: str, root: str):
    nroot = root if root.endswith("/") else root + "/"
    assert canonical.startswith(nroot), f"{canonical!r} escaped {nroot!r}"
    assert len(canonical) >= len(nroot)
