"""
SQL statements and stored procedure names.

Centralizing these values keeps table and procedure names out of the
service layer. Statements use named bind parameters and stick to SQL that
MySQL and SQLite both accept.
"""


class StoredProcedures:
    """Stored procedures exposed by the database."""

    # (user_id, status) -> plants joined with variety, stage, location,
    # photos, notes, warning and projections as JSON columns
    PLANTS_WITH_STAGES_AND_LOCATIONS = "GetPlantsWithStagesAndLocations"


class PlantQueries:
    """Plant rows and their joined reference data."""

    SELECT_BY_ID = """
        SELECT p.plant_obj_id, p.user_id, p.plant_name, p.date_planted,
               p.date_updated, p.is_transplant, p.status, p.sensitivities,
               v.variety_id, v.variety_name,
               l.location_id, l.location_name, l.sun_exposure,
               s.stage_id, s.stage_name, s.description AS stage_description,
               s.stage_order, s.cold_tolerance, s.heat_tolerance
        FROM plant p
        LEFT JOIN variety v ON v.variety_id = p.variety_id
        LEFT JOIN location l ON l.location_id = p.location_id
        LEFT JOIN stage s ON s.stage_id = p.stage_id
        WHERE p.plant_obj_id = :plant_id
          AND (:user_id IS NULL OR p.user_id = :user_id)
    """

    EXISTS = """
        SELECT plant_obj_id FROM plant
        WHERE plant_obj_id = :plant_id
          AND (:user_id IS NULL OR user_id = :user_id)
    """

    INSERT = """
        INSERT INTO plant (user_id, plant_name, variety_id, location_id, stage_id,
                           date_planted, date_updated, is_transplant, status, sensitivities)
        VALUES (:user_id, :plant_name, :variety_id, :location_id, :stage_id,
                :date_planted, :date_updated, :is_transplant, :status, :sensitivities)
    """

    # Column list is filled in from a fixed whitelist in PlantService
    UPDATE_TEMPLATE = """
        UPDATE plant SET {assignments}
        WHERE plant_obj_id = :plant_id
          AND (:user_id IS NULL OR user_id = :user_id)
    """


class PhotoQueries:
    """Photo and growth-stage records."""

    INSERT_PLANT_STAGE = """
        INSERT INTO plant_stage (plant_obj_id, status, date)
        VALUES (:plant_id, :status, :date)
    """

    INSERT_PHOTO = """
        INSERT INTO photo (storage_photo_id, plant_obj_id, plant_stage_id, stage_id,
                           date_taken, date_uploaded)
        VALUES (:key, :plant_id, :plant_stage_id, :stage_id, :date_taken, :date_uploaded)
    """

    SELECT_FOR_PLANT = """
        SELECT ph.photo_id AS id, ph.storage_photo_id AS filename,
               ph.date_taken, ph.date_uploaded,
               ph.stage_id AS stage, ph.plant_stage_id
        FROM photo ph
        WHERE ph.plant_obj_id = :plant_id
        ORDER BY ph.date_taken, ph.photo_id
    """

    # Ownership: the photo must belong to the plant, and the plant to the user
    SELECT_OWNED = """
        SELECT ph.photo_id, ph.storage_photo_id
        FROM photo ph
        JOIN plant p ON p.plant_obj_id = ph.plant_obj_id
        WHERE ph.photo_id = :photo_id
          AND ph.plant_obj_id = :plant_id
          AND (:user_id IS NULL OR p.user_id = :user_id)
    """

    DELETE_BY_ID = "DELETE FROM photo WHERE photo_id = :photo_id"

    UPDATE_TEMPLATE = "UPDATE photo SET {assignments} WHERE photo_id = :photo_id"


class NoteQueries:
    """Notes attached to a plant by a user."""

    SELECT_FOR_PLANT = """
        SELECT note_id, plant_obj_id, user_id, content, created_at, updated_at
        FROM note
        WHERE plant_obj_id = :plant_id
          AND (:user_id IS NULL OR user_id = :user_id)
        ORDER BY created_at, note_id
    """

    SELECT_BY_ID = """
        SELECT note_id, plant_obj_id, user_id, content, created_at, updated_at
        FROM note WHERE note_id = :note_id
    """

    INSERT = """
        INSERT INTO note (plant_obj_id, user_id, content, created_at, updated_at)
        VALUES (:plant_id, :user_id, :content, :created_at, :created_at)
    """

    UPDATE = """
        UPDATE note SET content = :content, updated_at = :updated_at
        WHERE note_id = :note_id
          AND (:user_id IS NULL OR user_id = :user_id)
    """

    DELETE = """
        DELETE FROM note
        WHERE note_id = :note_id
          AND (:user_id IS NULL OR user_id = :user_id)
    """


class ReferenceQueries:
    """Static reference data."""

    STAGES = """
        SELECT stage_id, stage_name, description, stage_order, cold_tolerance, heat_tolerance
        FROM stage ORDER BY stage_order, stage_id
    """

    LOCATIONS = """
        SELECT location_id, location_name, sun_exposure
        FROM location ORDER BY location_name
    """

    VARIETIES = """
        SELECT variety_id, variety_name
        FROM variety ORDER BY variety_name
    """
