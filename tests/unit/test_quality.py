"""
Unit Tests - Data Quality
"""
from datetime import date, timezone

import polars as pl

from conftest import make_campaign, make_order
from src.data.models import MONETARY_STATUSES, OrderStatus
from src.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    campaigns_frame,
    create_campaigns_validator,
    create_orders_validator,
    orders_frame,
)


class TestDataValidator:
    """Tests for DataValidator"""
    
    def test_not_null_check_passes(self):
        """Test not null check with valid data"""
        df = pl.DataFrame({"id": ["a", "b", "c"]})
        
        result = DataValidator().add_not_null_check("id").validate(df)
        
        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1
    
    def test_not_null_check_fails(self):
        """Test not null check with null values"""
        df = pl.DataFrame({"id": ["a", None, "c"]})
        
        result = DataValidator().add_not_null_check("id").validate(df)
        
        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1
        assert result.failures[0].name == "not_null_id"
    
    def test_unique_check_fails(self):
        """Test unique check with duplicates"""
        df = pl.DataFrame({"id": ["o1", "o2", "o1"]})
        
        result = DataValidator().add_unique_check("id").validate(df)
        
        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].failed_rows == 1
    
    def test_range_check(self):
        """Test range check"""
        df = pl.DataFrame({"partial_refund_amount": [0.0, 5.0, -1.0]})
        
        result = DataValidator().add_range_check("partial_refund_amount", min_value=0).validate(df)
        
        assert result.checks[0].failed_rows == 1
    
    def test_missing_column(self):
        df = pl.DataFrame({"id": ["a"]})
        
        result = DataValidator().add_enum_check("status", ["PAID"]).validate(df)
        
        assert result.status == ValidationStatus.FAILED
        assert "not found" in result.checks[0].message
    
    def test_warning_only(self):
        """Warnings give a partial status without failures"""
        df = pl.DataFrame({"unit_count": [0, 2]})
        
        result = (
            DataValidator()
            .add_positive_check("unit_count", allow_zero=False, severity=ValidationSeverity.WARNING)
            .validate(df)
        )
        
        assert result.status == ValidationStatus.PARTIAL
        assert result.failures == []
    
    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"unit_count": [0]})
        
        result = (
            DataValidator(strict_mode=True)
            .add_positive_check("unit_count", allow_zero=False, severity=ValidationSeverity.WARNING)
            .validate(df)
        )
        
        assert result.status == ValidationStatus.FAILED
    
    def test_timestamps_are_timezone_aware(self):
        df = pl.DataFrame({"id": ["a"]})
        
        result = DataValidator().add_not_null_check("id").validate(df)
        
        assert result.started_at.tzinfo is timezone.utc
        assert result.completed_at >= result.started_at


class TestRowValidators:
    """Tests for the pre-built campaign and order validators"""
    
    def test_clean_rows_pass(self, scenario_campaign):
        campaigns = [scenario_campaign]
        
        assert create_campaigns_validator().validate(campaigns_frame(campaigns)).failures == []
        assert create_orders_validator(MONETARY_STATUSES).validate(orders_frame(campaigns)).failures == []
    
    def test_deleted_campaign_fails(self):
        campaigns = [make_campaign("gb-1", date(2024, 1, 1), delete=1)]
        
        result = create_campaigns_validator().validate(campaigns_frame(campaigns))
        
        assert [c.name for c in result.failures] == ["enum_delete"]
    
    def test_status_outside_requested_set_fails(self):
        campaigns = [make_campaign("gb-1", date(2024, 1, 1), orders=[
            make_order("o1", "gb-1", OrderStatus.NOTPAID),
        ])]
        
        result = create_orders_validator(MONETARY_STATUSES).validate(orders_frame(campaigns))
        
        assert [c.name for c in result.failures] == ["enum_status"]
    
    def test_order_attached_to_wrong_campaign_fails(self):
        campaigns = [make_campaign("gb-1", date(2024, 1, 1), orders=[make_order("o1", "gb-9")])]
        
        result = create_orders_validator(MONETARY_STATUSES).validate(orders_frame(campaigns))
        
        assert [c.name for c in result.failures] == ["orders_match_group_buy"]
    
    def test_empty_frames(self):
        assert campaigns_frame([]).height == 0
        assert create_orders_validator(MONETARY_STATUSES).validate(orders_frame([])).status == ValidationStatus.PASSED
