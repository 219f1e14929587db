"""Base repository with common CRUD operations"""
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any, Union
from pydantic import BaseModel
from supabase import Client

T = TypeVar('T', bound=BaseModel)
CreateT = TypeVar('CreateT', bound=BaseModel)
UpdateT = TypeVar('UpdateT', bound=BaseModel)

RecordId = Union[int, str]


class BaseRepository(Generic[T, CreateT, UpdateT]):
    """
    Base repository providing common content store operations.
    Hides Supabase implementation details from the rest of the application.

    Every call is an independent round trip; nothing here holds locks or
    opens transactions.
    """

    def __init__(self, client: Client, table_name: str, model_class: Type[T]):
        self._client = client
        self._table_name = table_name
        self._model_class = model_class

    def _to_model(self, data: Dict[str, Any]) -> T:
        """Convert database dict to domain model"""
        return self._model_class(**data)

    def _to_models(self, data: List[Dict[str, Any]]) -> List[T]:
        """Convert list of database dicts to domain models"""
        return [self._to_model(item) for item in data]

    def _table(self):
        return self._client.table(self._table_name)

    async def find_by_id(self, id: RecordId) -> Optional[T]:
        """Find a single record by ID"""
        response = self._table().select("*").eq("id", id).execute()

        if not response.data:
            return None

        return self._to_model(response.data[0])

    async def find_by_filters(
        self,
        filters: Dict[str, Any],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[T]:
        """Find records matching filters"""
        query = self._table().select("*")

        for key, value in filters.items():
            query = query.eq(key, value)

        if order_by:
            query = query.order(order_by, desc=descending)

        if limit:
            query = query.limit(limit)

        response = query.execute()
        return self._to_models(response.data)

    async def create(self, data: CreateT) -> T:
        """Create a new record"""
        data_dict = data.model_dump(exclude_unset=True, mode='json')
        response = self._table().insert(data_dict).execute()

        if not response.data:
            raise ValueError(f"Failed to create record in {self._table_name}")

        return self._to_model(response.data[0])

    async def update(self, id: RecordId, data: UpdateT) -> Optional[T]:
        """Update a record by ID"""
        data_dict = data.model_dump(exclude_unset=True, mode='json')

        if not data_dict:
            # No fields to update
            return await self.find_by_id(id)

        response = self._table().update(data_dict).eq("id", id).execute()

        if not response.data:
            return None

        return self._to_model(response.data[0])

    async def delete(self, id: RecordId) -> bool:
        """Delete a record by ID"""
        response = self._table().delete().eq("id", id).execute()
        return len(response.data) > 0
