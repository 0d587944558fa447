from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('users', '0001_initial'),
        ('jobs', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='worker',
            name='services',
            field=models.ManyToManyField(blank=True, related_name='workers', to='jobs.category'),
        ),
    ]
