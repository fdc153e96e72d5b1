# schoolms/services/csv_processor.py
import pandas as pd
import io
from typing import List, Dict, Any, Tuple
from fastapi import UploadFile
from pydantic import ValidationError

from ..schemas.staff import StaffCreate

STAFF_REQUIRED_COLUMNS = ['first_name', 'last_name', 'email']


class CSVProcessor:
    @staticmethod
    async def process_staff_csv(file: UploadFile) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Process a staff CSV file with validation and error reporting
        Returns: (valid_rows, validation_errors)
        """
        contents = await file.read()
        try:
            decoded_content = contents.decode('utf-8-sig')
            # Keep every cell as text, pydantic does the type coercion
            df = pd.read_csv(io.StringIO(decoded_content), dtype=str)
        except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ValueError(f"Failed to process CSV: {str(e)}")

        # Clean and standardize column names
        df.columns = df.columns.str.strip().str.lower().str.replace(' ', '_')

        missing_columns = [col for col in STAFF_REQUIRED_COLUMNS if col not in df.columns]
        if missing_columns:
            raise ValueError(f"Missing required columns: {missing_columns}")

        valid_rows = []
        validation_errors = []

        for index, row in df.iterrows():
            row_number = index + 2  # +2 for header and 0-based index
            row_dict = {}
            for col, value in row.items():
                if pd.notna(value):
                    value = value.strip()
                    if value != "":
                        row_dict[col] = value

            try:
                validated_row = StaffCreate(**row_dict)
                valid_rows.append({"row_number": row_number, "data": validated_row})
            except ValidationError as validation_error:
                validation_errors.append({
                    "row_number": row_number,
                    "email": row_dict.get("email"),
                    "error": "; ".join(
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in validation_error.errors()
                    )
                })

        return valid_rows, validation_errors

    @staticmethod
    def generate_csv_template() -> str:
        """Generate CSV template for staff import"""
        template_data = {
            'first_name': ['Asha', 'Rahul'],
            'last_name': ['Verma', 'Iyer'],
            'email': ['asha.verma@school.edu', 'rahul.iyer@school.edu'],
            'phone': ['+91-9000000001', '+91-9000000002'],
            'designation': ['Accountant', 'Librarian'],
            'department': ['Accounts', 'Library'],
            'employment_date': ['2024-06-01', '2023-04-15'],
            'basic_salary': [30000, 25000],
            'allowances': [5000, 3000],
        }

        df = pd.DataFrame(template_data)
        return df.to_csv(index=False)
