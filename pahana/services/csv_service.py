import pandas as pd
import io
from typing import List, Tuple, Type
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..core.exceptions import ValidationError
from ..core.logging import app_logger
from ..models.models import Customer, Item
from ..schemas.schemas import CustomerCreate, ItemCreate, CSVImportResponse

CUSTOMER_COLUMNS = ['account_no', 'name', 'address', 'phone', 'units_consumed']
ITEM_COLUMNS = ['code', 'name', 'unit_price']

class CSVService:
    """Bulk import of customers and items from uploaded CSV files."""

    @staticmethod
    def parse_csv_content(content: bytes, columns: List[str]) -> pd.DataFrame:
        """Parse CSV content and return DataFrame"""
        # Try different encodings
        for encoding in ['utf-8-sig', 'iso-8859-1', 'cp1252']:
            try:
                csv_string = content.decode(encoding)
                break
            except UnicodeDecodeError:
                continue
        else:
            raise ValidationError("Unsupported file encoding")

        try:
            df = pd.read_csv(
                io.StringIO(csv_string),
                sep=',',
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            app_logger.error(f"Error parsing CSV: {str(e)}")
            raise ValidationError(f"Could not read CSV file: {str(e)}") from e

        df.columns = [str(col).strip().lower() for col in df.columns]

        missing_columns = [col for col in columns if col not in df.columns]
        if missing_columns:
            raise ValidationError(f"Missing columns: {', '.join(missing_columns)}")

        app_logger.info(f"Successfully parsed CSV with {len(df)} rows")
        return df[columns]

    @staticmethod
    def validate_rows(df: pd.DataFrame, schema: Type[BaseModel]) -> Tuple[List[BaseModel], List[str]]:
        """Validate every row against ``schema``; returns records and errors"""
        records = []
        errors = []

        if df.empty:
            errors.append("CSV file is empty")
            return records, errors

        for idx, row in df.iterrows():
            try:
                records.append(schema(**{k: v.strip() for k, v in row.items()}))
            except PydanticValidationError as e:
                problems = ", ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                )
                # +2: header line and 1-based numbering
                errors.append(f"Row {idx + 2}: {problems}")

        return records, errors

    @staticmethod
    def import_customers(db: Session, content: bytes) -> CSVImportResponse:
        df = CSVService.parse_csv_content(content, CUSTOMER_COLUMNS)
        return CSVService._import(db, df, CustomerCreate, Customer, 'account_no')

    @staticmethod
    def import_items(db: Session, content: bytes) -> CSVImportResponse:
        df = CSVService.parse_csv_content(content, ITEM_COLUMNS)
        return CSVService._import(db, df, ItemCreate, Item, 'code')

    @staticmethod
    def _import(db: Session, df: pd.DataFrame, schema, model, key: str) -> CSVImportResponse:
        records, errors = CSVService.validate_rows(df, schema)
        if errors:
            return CSVImportResponse(
                success=False,
                message="Invalid data in CSV file",
                imported_count=0,
                errors=errors[:10]  # Limit errors
            )

        key_column = getattr(model, key)
        existing = {
            row[0] for row in db.query(key_column).filter(
                key_column.in_([getattr(r, key) for r in records])
            ).all()
        }

        new_rows = []
        seen = set(existing)
        for record in records:
            record_key = getattr(record, key)
            if record_key in seen:
                continue
            seen.add(record_key)
            new_rows.append(model(**record.model_dump()))

        skipped_count = len(records) - len(new_rows)

        try:
            db.add_all(new_rows)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            app_logger.error(f"Error importing CSV data: {str(e)}")
            return CSVImportResponse(
                success=False,
                message=f"Import failed: {str(e)}",
                imported_count=0,
                errors=[str(e)]
            )

        app_logger.info(f"Imported {len(new_rows)} {model.__tablename__}, skipped {skipped_count} existing")

        return CSVImportResponse(
            success=True,
            message=f"Imported {len(new_rows)} {model.__tablename__}",
            imported_count=len(new_rows),
            skipped_count=skipped_count,
            errors=[]
        )
