"""
c2s_userdata.engine.tokens — Player Token Derivation
=====================================================

A record is bound to whoever knows both the player's stable ID and their
player-specific secret.  Neither value is stored; only the HMAC is.

The ID and the secret are fed to the MAC as two consecutive updates with
no delimiter, so ``("ab", "c")`` and ``("a", "bc")`` derive the same
token.  Existing stored tokens depend on this exact construction.
"""

from __future__ import annotations

import hashlib
import hmac


def derive_token(server_secret: str, player_id: str, player_token: str) -> str:
    """Return ``hex(HMAC-SHA1(server_secret, player_id || player_token))``."""
    mac = hmac.new(server_secret.encode("utf-8"), digestmod=hashlib.sha1)
    mac.update(player_id.encode("utf-8"))
    mac.update(player_token.encode("utf-8"))
    return mac.hexdigest()
