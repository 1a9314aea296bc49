"""
Users API Router
Registration and lookup of patients, doctors and caregivers
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.user import UserCreate, UserResponse, UserList
from models import UserRole


router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Register a user

    - **role**: patient, doctor or caregiver
    - **phone**: caregivers are texted on this number when present
    """
    patient_service = services.get_patient_service()

    try:
        return await patient_service.create_user(
            name=user_data.name,
            email=user_data.email,
            role=user_data.role,
            phone=user_data.phone,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/", response_model=UserList)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    db: Session = Depends(get_db)
):
    """List users"""
    patient_service = services.get_patient_service()
    users = await patient_service.list_users(role=role, db=db)
    return UserList(users=users, total=len(users))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db)
):
    """Get a user by ID"""
    patient_service = services.get_patient_service()
    user = await patient_service.get_user(user_id, db=db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )

    return user


@router.get("/{caregiver_id}/patients", response_model=UserList)
async def get_caregiver_patients(
    caregiver_id: int,
    db: Session = Depends(get_db)
):
    """Patients assigned to a caregiver"""
    contact_service = services.get_contact_service()
    patients = await contact_service.list_caregiver_patients(caregiver_id, db=db)
    return UserList(users=patients, total=len(patients))
