import pytest
from sqlalchemy.exc import IntegrityError

from user_management.models.user import User, UserRole
from user_management.repositories.user_repository import MAX_OFFSET, Page, PageRequest, UserRepository


def test_page_request_rejects_negative_page() -> None:
    with pytest.raises(ValueError):
        PageRequest(page=-1, size=10)


def test_page_request_rejects_empty_page_size() -> None:
    with pytest.raises(ValueError):
        PageRequest(page=0, size=0)


def test_page_request_rejects_offset_beyond_sql_range() -> None:
    with pytest.raises(ValueError):
        PageRequest(page=10**18, size=100)


def test_page_request_accepts_largest_offset() -> None:
    assert PageRequest(page=MAX_OFFSET, size=1).offset == MAX_OFFSET


def test_page_request_offset_uses_zero_based_index() -> None:
    assert PageRequest(page=3, size=20).offset == 60


def test_page_total_pages_rounds_up() -> None:
    assert Page(content=[], total_elements=7, page=0, size=3).total_pages == 3
    assert Page(content=[], total_elements=0, page=0, size=3).total_pages == 0


def test_page_map_keeps_metadata() -> None:
    page = Page(content=[1, 2], total_elements=5, page=1, size=2)

    mapped = page.map(str)

    assert mapped.content == ['1', '2']
    assert (mapped.total_elements, mapped.total_pages, mapped.page, mapped.size) == (5, 3, 1, 2)


def test_save_assigns_id_and_timestamps(user_db) -> None:
    repository = UserRepository(user_db)

    user = repository.save(User(name='Dana', email='dana@example.com', role=UserRole.USER, active=True))

    assert user.id is not None
    assert user.created_at is not None
    assert user.updated_at is not None
    assert repository.exists_by_id(user.id)
    assert repository.exists_by_email('dana@example.com')
    assert repository.find_by_email('dana@example.com').id == user.id


def test_save_rejects_duplicate_email_and_rolls_back(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    with pytest.raises(IntegrityError):
        repository.save(User(name='Other Alice', email='alice@example.com', role=UserRole.USER, active=True))

    assert len(repository.find_all()) == 3


def test_find_by_id_returns_none_when_missing(user_db) -> None:
    repository = UserRepository(user_db)

    assert repository.find_by_id(999) is None
    assert repository.exists_by_id(999) is False
    assert repository.exists_by_email('nobody@example.com') is False


def test_delete_by_id_removes_row(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)
    target = seeded_users[0]

    repository.delete_by_id(target.id)

    assert repository.find_by_id(target.id) is None
    assert repository.exists_by_email('alice@example.com') is False


def test_find_all_paged_returns_slice_and_totals(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_all_paged(PageRequest(page=0, size=1, sort_by='id'))

    assert [user.email for user in page.content] == ['alice@example.com']
    assert page.total_elements == 3
    assert page.total_pages == 3


def test_find_all_paged_sorts_descending(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_all_paged(PageRequest(page=0, size=10, sort_by='name', direction='desc'))

    assert [user.name for user in page.content] == ['Carol', 'Bob', 'Alice']


def test_find_all_paged_past_last_page_is_empty(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_all_paged(PageRequest(page=5, size=2))

    assert page.content == []
    assert page.total_elements == 3


def test_find_paged_by_active(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_paged_by_active(True, PageRequest(page=0, size=10))

    assert {user.name for user in page.content} == {'Alice', 'Carol'}
    assert page.total_elements == 2


def test_find_paged_by_role(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_paged_by_role(UserRole.ADMIN, PageRequest(page=0, size=10))

    assert {user.name for user in page.content} == {'Bob', 'Carol'}


def test_find_paged_by_active_and_role(user_db, seeded_users) -> None:
    repository = UserRepository(user_db)

    page = repository.find_paged_by_active_and_role(False, UserRole.ADMIN, PageRequest(page=0, size=10))

    assert [user.name for user in page.content] == ['Bob']
    assert page.total_pages == 1
