import pytest

from conftest import PASSWORD
from models.users import User, UserRole
from scripts import create_user as script
from utils.hashing import verify_password


def test_create_user_with_role(db_session) -> None:
    user = script.create_user(db_session, email=' Prof@IIITNR.edu.in ', password=PASSWORD,
                              role=UserRole.FACULTY, name='Prof. X')

    assert user.email == 'prof@iiitnr.edu.in'
    assert user.role == UserRole.FACULTY
    assert verify_password(PASSWORD, user.password_hash)


def test_create_user_rejects_existing_email(db_session, make_user) -> None:
    make_user(email='admin@iiitnr.edu.in')

    with pytest.raises(ValueError, match='User already exists'):
        script.create_user(db_session, email='ADMIN@iiitnr.edu.in', password=PASSWORD, role=UserRole.ADMIN)


def test_create_user_rejects_short_password(db_session) -> None:
    with pytest.raises(ValueError, match='password must be at least'):
        script.create_user(db_session, email='ta@iiitnr.edu.in', password='short', role=UserRole.TA)

    assert db_session.query(User).count() == 0


def test_main_uses_the_configured_session(monkeypatch, session_factory, db_session, capsys) -> None:
    monkeypatch.setattr(script, 'SessionLocal', session_factory)
    monkeypatch.setattr(script, 'init_db', lambda: None)

    code = script.main(['--email', 'ta@iiitnr.edu.in', '--password', PASSWORD, '--role', 'ta'])

    assert code == 0
    assert 'ta@iiitnr.edu.in (TA)' in capsys.readouterr().out
    assert db_session.query(User).one().role == UserRole.TA
    assert script.main(['--email', 'ta@iiitnr.edu.in', '--password', PASSWORD, '--role', 'TA']) == 1
