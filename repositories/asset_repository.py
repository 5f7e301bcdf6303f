"""
Asset Repository - data access layer for Asset model.
Optimized with optional session parameter for transaction reuse.
"""

from datetime import datetime
from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import Asset, AssetType
from services.exceptions import UnknownAssetTypeError


class AssetRepository:
    """Repository for Asset operations. Assets are never deleted."""

    @staticmethod
    def add(
        name: str,
        symbol: str,
        asset_type: str,
        session: Optional[Session] = None
    ) -> Asset:
        """
        Add a new asset to the database.

        Args:
            name: Display name
            symbol: Ticker or account code
            asset_type: 'etf', 'crypto' or 'savings'
            session: Optional existing session for transaction reuse

        Returns:
            Created Asset object
        """
        try:
            asset_type = AssetType(asset_type).value
        except ValueError:
            raise UnknownAssetTypeError(str(asset_type), name) from None

        def _create_asset(sess: Session) -> Asset:
            asset = Asset(
                name=name,
                symbol=symbol.strip().upper(),
                asset_type=asset_type
            )
            sess.add(asset)
            sess.commit()
            sess.refresh(asset)
            return asset

        if session is not None:
            return _create_asset(session)
        else:
            with Session(get_engine()) as session:
                return _create_asset(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Asset]:
        """
        Retrieve all assets from the database.

        Args:
            session: Optional existing session for transaction reuse

        Returns:
            List of all Asset objects
        """
        def _get_all(sess: Session) -> List[Asset]:
            statement = select(Asset).order_by(Asset.id)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_id(asset_id: int, session: Optional[Session] = None) -> Optional[Asset]:
        """
        Retrieve an asset by its ID.

        Args:
            asset_id: Asset ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            Asset object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Asset]:
            return sess.get(Asset, asset_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def rename(asset_id: int, name: str, session: Optional[Session] = None) -> Optional[Asset]:
        """
        Change an asset's display name, the only mutable field.

        Args:
            asset_id: Asset ID to update
            name: New display name
            session: Optional existing session for transaction reuse

        Returns:
            Updated Asset object or None if not found
        """
        def _rename(sess: Session) -> Optional[Asset]:
            asset = sess.get(Asset, asset_id)
            if asset:
                asset.name = name
                asset.updated_at = datetime.now()
                sess.add(asset)
                sess.commit()
                sess.refresh(asset)
                return asset
            return None

        if session is not None:
            return _rename(session)
        else:
            with Session(get_engine()) as session:
                return _rename(session)
