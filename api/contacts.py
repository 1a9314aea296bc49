"""
Contacts API Router
Emergency contact directory and caregiver assignment
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_patient_id, services
from api.schemas.contact import (
    ContactCreate,
    ContactUpdate,
    ContactResponse,
    ContactList,
    CaregiverAssign,
    CaregiverResponse,
)


router = APIRouter(prefix="/contacts", tags=["contacts"])


def _contact_not_found(contact_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Contact {contact_id} not found"
    )


# ==================== EMERGENCY CONTACTS ====================

@router.post("/", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def add_contact(
    contact_data: ContactCreate,
    db: Session = Depends(get_db)
):
    """
    Add an emergency contact

    - **relation**: defaults to "Emergency Contact"
    - **is_primary**: demotes any existing primary contact
    """
    contact_service = services.get_contact_service()

    try:
        return await contact_service.add_contact(
            patient_id=contact_data.patient_id,
            name=contact_data.name,
            phone=contact_data.phone,
            relation=contact_data.relation,
            is_primary=contact_data.is_primary,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/patient/{patient_id}", response_model=ContactList)
async def list_contacts(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Patient's emergency contacts, primary first"""
    contact_service = services.get_contact_service()
    contacts = await contact_service.list_contacts(patient_id, db=db)
    return ContactList(contacts=contacts, total=len(contacts))


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: int,
    db: Session = Depends(get_db)
):
    """Get a contact by ID"""
    contact_service = services.get_contact_service()
    contact = await contact_service.get_contact(contact_id, db=db)

    if not contact:
        raise _contact_not_found(contact_id)

    return contact


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    updates: ContactUpdate,
    db: Session = Depends(get_db)
):
    """Edit a contact; omitted fields keep their values"""
    contact_service = services.get_contact_service()

    try:
        contact = await contact_service.update_contact(
            contact_id,
            updates.model_dump(exclude_unset=True),
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not contact:
        raise _contact_not_found(contact_id)

    return contact


@router.post("/{contact_id}/primary", response_model=ContactResponse)
async def set_primary_contact(
    contact_id: int,
    db: Session = Depends(get_db)
):
    """Make this the patient's primary contact"""
    contact_service = services.get_contact_service()

    try:
        contact = await contact_service.set_primary(contact_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not contact:
        raise _contact_not_found(contact_id)

    return contact


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: int,
    db: Session = Depends(get_db)
):
    """Remove a contact"""
    contact_service = services.get_contact_service()

    if not await contact_service.delete_contact(contact_id, db=db):
        raise _contact_not_found(contact_id)


# ==================== CAREGIVER ====================

@router.get("/patient/{patient_id}/caregiver", response_model=CaregiverResponse)
async def get_caregiver(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Patient's assigned caregiver (null when none)"""
    contact_service = services.get_contact_service()
    caregiver = await contact_service.get_caregiver(patient_id, db=db)
    return CaregiverResponse(patient_id=patient_id, caregiver=caregiver)


@router.put("/patient/{patient_id}/caregiver", response_model=CaregiverResponse)
async def assign_caregiver(
    assignment: CaregiverAssign,
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Assign or replace the patient's caregiver"""
    contact_service = services.get_contact_service()

    try:
        await contact_service.assign_caregiver(patient_id, assignment.caregiver_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    caregiver = await contact_service.get_caregiver(patient_id, db=db)
    return CaregiverResponse(patient_id=patient_id, caregiver=caregiver)


@router.delete("/patient/{patient_id}/caregiver", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_caregiver(
    patient_id: int = Depends(get_current_patient_id),
    db: Session = Depends(get_db)
):
    """Remove the patient's caregiver"""
    contact_service = services.get_contact_service()

    if not await contact_service.unassign_caregiver(patient_id, db=db):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Patient {patient_id} has no caregiver"
        )
