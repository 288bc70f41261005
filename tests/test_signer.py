import pytest
from solders.keypair import Keypair
from solders.message import to_bytes_versioned
from solders.pubkey import Pubkey

from errors import SigningError
from helpers import make_swap_tx, swap_like_ix
from signer import sign_message


def _message(payer):
    return make_swap_tx(payer, [swap_like_ix(payer, Pubkey.new_unique(), Pubkey.new_unique())]).message


def test_signature_covers_versioned_payload(kp):
    msg = _message(kp.pubkey())
    tx = sign_message(msg, kp)

    assert tx.message == msg
    assert len(tx.signatures) == 1
    assert tx.signatures[0] == kp.sign_message(to_bytes_versioned(msg))


def test_wrong_payer_is_refused(kp):
    msg = _message(Keypair().pubkey())
    with pytest.raises(SigningError):
        sign_message(msg, kp)
